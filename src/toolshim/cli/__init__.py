# src/toolshim/cli/__init__.py
