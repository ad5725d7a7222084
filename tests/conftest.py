import os

# Finite-difference gradients are enough for the small problems used here.
os.environ.setdefault("GPGAM_BACKEND", "numpy")
