"""Analytics app: aggregated platform and owner metrics."""
