# dealscope/inputs/__init__.py
from .inputs import AppInputs, InputsLoader, RunOptions, load_inputs

__all__ = ["AppInputs", "InputsLoader", "RunOptions", "load_inputs"]
