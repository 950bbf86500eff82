"""kwikqueue - digital queue and order tracking for food-service counters"""

__version__ = "1.0.0"
