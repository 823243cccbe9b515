"""Core fetching, caching, rendering and health-check machinery."""
