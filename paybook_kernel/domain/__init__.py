"""Pure kernel domain: clock and journal validation."""
