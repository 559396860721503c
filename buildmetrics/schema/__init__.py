"""Point and batch model shared by generators and writers."""

from .point import Point, Batch, ConsistencyLevel, FieldValue

__all__ = ['Point', 'Batch', 'ConsistencyLevel', 'FieldValue']
