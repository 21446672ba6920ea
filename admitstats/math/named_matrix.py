"""
Named Matrix implementation for admitstats.

This module provides an immutable matrix with named rows and columns,
used for correlation matrices (variables on both axes) and PCA loading
and contribution tables.
"""

import numpy as np
import pandas as pd
from typing import List, Optional, Union, Any


class IndexHash:
    """
    Maintains an ordered index of names with fast lookup.
    """

    def __init__(self, names: Optional[List[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}
        if len(self._index_hash) != len(self._names):
            raise ValueError("Names must be unique")

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def index(self, name: Any) -> Optional[int]:
        """
        Get the index for a given name, or None if not found.

        Args:
            name: The name to look up

        Returns:
            The index if found, None otherwise
        """
        return self._index_hash.get(name)

    def subset(self, names: List[Any]) -> 'IndexHash':
        """
        Create a subset of the index with only the specified names.

        Args:
            names: List of names to include in the subset

        Returns:
            A new IndexHash containing only the specified names
        """
        valid_names = [name for name in names if name in self._index_hash]
        return IndexHash(valid_names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        return name in self._index_hash


class NamedMatrix:
    """
    A read-only matrix with named rows and columns.

    Backed by a pandas DataFrame; every operation returns a new matrix.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix.

        Args:
            matrix: Matrix data (numpy array or pandas DataFrame)
            rownames: List of row names (taken from the DataFrame index if omitted)
            colnames: List of column names (taken from the DataFrame columns if omitted)
        """
        if matrix is None:
            matrix = np.zeros((len(rownames or []), len(colnames or [])))

        if isinstance(matrix, pd.DataFrame):
            frame = matrix.astype(float)
            if rownames is not None:
                frame.index = list(rownames)
            if colnames is not None:
                frame.columns = list(colnames)
        else:
            values = np.asarray(matrix, dtype=float)
            rows = rownames if rownames is not None else range(values.shape[0])
            cols = colnames if colnames is not None else range(values.shape[1])
            frame = pd.DataFrame(values, index=list(rows), columns=list(cols))

        self._row_index = IndexHash(list(frame.index))
        self._col_index = IndexHash(list(frame.columns))
        self._matrix = frame

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a numpy array."""
        return self._matrix.to_numpy(copy=True)

    @property
    def shape(self):
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._row_index.get_names()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._col_index.get_names()

    def get(self, row: Any, col: Any) -> float:
        """
        Get a single value by row and column name.

        Args:
            row: Row name
            col: Column name

        Returns:
            The value at (row, col)
        """
        i = self._row_index.index(row)
        j = self._col_index.index(col)
        if i is None:
            raise KeyError(f"Row name '{row}' not found")
        if j is None:
            raise KeyError(f"Column name '{col}' not found")
        return float(self._matrix.iat[i, j])

    def rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified rows, in the given order.

        Args:
            rownames: List of row names to include

        Returns:
            A new NamedMatrix with only the specified rows
        """
        valid_rows = self._row_index.subset(rownames).get_names()
        return NamedMatrix(self._matrix.loc[valid_rows, :])

    def colname_subset(self, colnames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified columns, in the given order.

        Args:
            colnames: List of column names to include

        Returns:
            A new NamedMatrix with only the specified columns
        """
        valid_cols = self._col_index.subset(colnames).get_names()
        return NamedMatrix(self._matrix.loc[:, valid_cols])

    def is_symmetric(self, tol: float = 1e-9) -> bool:
        """True when the matrix is square, names agree on both axes, and M == M.T within tol."""
        if self.rownames() != self.colnames():
            return False
        values = self._matrix.to_numpy()
        return bool(np.allclose(values, values.T, rtol=0.0, atol=tol))

    def to_dataframe(self) -> pd.DataFrame:
        return self._matrix.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedMatrix):
            return NotImplemented
        return self._matrix.equals(other._matrix)

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={len(self._row_index)}, cols={len(self._col_index)})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {len(self._row_index)} rows and "
                f"{len(self._col_index)} columns\n{self._matrix}")
