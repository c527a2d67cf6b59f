"""IdealTwin: gamified virtual-twin habit and day planner core"""

__version__ = "0.1.0"
