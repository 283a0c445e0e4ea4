"""graspdev - resume or create Choreonoid + Grasp Plugin development containers."""

__version__ = "0.1.0"
