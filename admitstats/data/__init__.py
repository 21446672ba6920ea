"""
Dataset loading for admitstats.
"""

from admitstats.data.loader import LoadedDataset, load_dataset, load_dataframe
