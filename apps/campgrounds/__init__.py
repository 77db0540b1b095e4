"""Campgrounds app: listings, campsites, booked dates and safety alerts."""
