"""ResQ multi-hazard risk prediction for Odisha"""

__version__ = "1.0.0"
