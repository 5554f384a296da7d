# This file is protected via CODEOWNERS

__version__ = "0.1.0"
