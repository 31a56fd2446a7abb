"""
Clustering methods for financial data analysis.

This package provides modules for:
- Synthetic data generation and observation matrix handling
- Proximity matrices
- K-means and agglomerative hierarchical clustering
- Cluster-count selection (elbow / variance ratio, gap statistic, silhouette)
- Recovery metrics and visualization
"""

from . import data
from . import clustering
from . import evaluation
from . import visualization

__version__ = "1.0.0"
