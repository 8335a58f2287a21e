"""Product change events pushed over the hub."""
