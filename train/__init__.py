# train/__init__.py
