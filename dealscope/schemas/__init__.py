# dealscope/schemas/__init__.py
