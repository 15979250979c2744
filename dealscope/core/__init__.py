# dealscope/core/__init__.py
