"""Adapters concretos das capacidades consumidas pelo kernel."""

from .pandas_dataset import PandasDataset  # noqa: F401
