"""Metrics module for HA Presence service."""

from prometheus_client import (
    Counter,
    Histogram,
)

# Counter to track REST API calls
# This will be used to count how many times each API endpoint is called
# and the status code of the response
rest_api_calls_total = Counter(
    "ha_presence_rest_api_calls_total",
    "REST API calls counter",
    ["path", "status_code"],
)

# Histogram to measure response durations
# This will be used to track how long it takes to handle requests
response_duration_seconds = Histogram(
    "ha_presence_response_duration_seconds", "Response durations", ["path"]
)

# Counter of presence fetches from Home Assistant, labelled by outcome
# ("success" or one of the failure kinds)
presence_fetches_total = Counter(
    "ha_presence_fetches_total",
    "Presence fetches from Home Assistant",
    ["outcome"],
)

# Counter of presence requests answered from the cache
presence_cache_hits_total = Counter(
    "ha_presence_cache_hits_total", "Presence requests served from cache"
)

# Counter of connection tests, labelled by result
connection_tests_total = Counter(
    "ha_presence_connection_tests_total",
    "Home Assistant connection tests",
    ["success"],
)
