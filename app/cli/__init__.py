"""
Project generator — scaffolds new services from this repository.

Never shipped in generated projects: the directory is excluded from the
copy and its registration is stripped from ``app/__init__.py``.
"""
