"""Campus business rules: policy, lifecycle, membership and registration."""
