"""Batch clustering package."""

from ideagraph.clustering.builder import Cluster, ClusterBuilder, ClusterMember

__all__ = ["Cluster", "ClusterBuilder", "ClusterMember"]
