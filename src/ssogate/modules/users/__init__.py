"""Users - platform accounts."""
