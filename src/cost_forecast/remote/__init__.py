"""Remote API clients."""

from cost_forecast.remote.cost_explorer import CostExplorerClient, ForecastAPI

__all__ = ["CostExplorerClient", "ForecastAPI"]
