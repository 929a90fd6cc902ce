"""HTTP surface of the Huddle API."""
