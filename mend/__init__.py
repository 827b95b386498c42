"""Mend recovery engine.

Personalized recovery readiness scoring from biometric time series and
post-activity cooldown modeling.
"""

__version__ = "0.1.0"
