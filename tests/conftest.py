import sys
import os

# Project root, so tests can import the "src" package directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Prepend it so the checkout wins over an installed copy
sys.path.insert(0, PROJECT_ROOT)
