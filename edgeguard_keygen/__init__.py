"""edge-guard-keygen - JWT signing key lifecycle management backed by Doppler."""

__version__ = "0.1.0"
__author__ = "Edge Guard Team"
