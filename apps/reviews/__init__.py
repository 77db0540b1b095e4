"""Reviews app: guest ratings and comments on campgrounds."""
