import logging
import sys
import os

import numpy as np

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from orbitcore.config import load_settings
from orbitcore.ephemeris.provider import EphemerisProvider
from orbitcore.errors import OrbitCoreError
from orbitcore.mission.porkchop import PorkchopBuilder


def main():
    print("====================================")
    print("   Porkchop Grid Demo (Earth-Mars)  ")
    print("====================================")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    settings = load_settings()
    provider = EphemerisProvider.from_settings(settings)
    builder = PorkchopBuilder(provider, max_speed=settings.max_transfer_speed)

    # The 2026 Earth-Mars opportunity
    try:
        grid = builder.build("earth", "mars", ("2026-09-01", "2027-01-01"), ("2027-06-01", "2028-01-01"), 40)
    except OrbitCoreError as e:
        print(f"Could not build porkchop grid: {e}")
        return

    print(f"Grid: {grid.shape[0]} departures x {grid.shape[1]} arrivals, "
          f"{int(np.isnan(grid.c3).sum())} cells without a transfer")

    for metric, unit in (("c3", "km^2/s^2"), ("total_delta_v", "km/s")):
        best = grid.optimum(metric)
        if best is None:
            print(f"No valid {metric} cells.")
            continue
        i, j, value = best
        print(f"Minimum {metric}: {value:.2f} {unit}  "
              f"depart {grid.departure_dates[i]}  arrive {grid.arrival_dates[j]}  "
              f"TOF {grid.tof_days[i, j]:.0f} d")


if __name__ == "__main__":
    main()
