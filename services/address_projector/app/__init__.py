"""Address projector: folds the address event log into PostGIS."""
