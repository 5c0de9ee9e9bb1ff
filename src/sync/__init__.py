"""Remote synchronization for collections.

This package pulls records from and pushes records to an HTTP
endpoint bound one-to-one to a collection.
"""
