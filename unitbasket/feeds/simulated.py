"""
Simulated market — slow sine drift around typical spot levels.
Useful for demos and for running without network access.
"""
import math
import time


class SimulatedFeed:
    name = "simulated"

    def __init__(self, clock=time.time):
        self.clock = clock

    def gold_spot(self):
        # Gold moves +/- 50 around 1900 USD
        return 1900 + math.sin(self.clock() / 60) * 50

    def fx_rates(self):
        t = self.clock()
        return {
            "BRL": 5 + math.sin(t / 90),
            "RUB": 90 + math.sin(t / 80),
            "INR": 83 + math.sin(t / 70),
            "CNY": 7.2 + math.sin(t / 100),
            "ZAR": 18 + math.sin(t / 110),
        }
