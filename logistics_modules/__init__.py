"""Business (orders by convoy) and Express (parcels by trip) module definitions."""
