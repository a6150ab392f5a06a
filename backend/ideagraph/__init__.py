"""Idea graph: ingest feed posts and fold them into a linked problem/idea/product graph."""
