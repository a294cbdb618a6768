"""SensoryCompass analytics core.

Statistical pattern analysis over behavioral and sensory observations, with a
content-addressed cache in front of every computation.
"""

__version__ = "0.1.0"
