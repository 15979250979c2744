# dealscope/reports/__init__.py
