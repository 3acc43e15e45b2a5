"""CampusHub: clubs, events and capacity-bound registrations for a campus."""
