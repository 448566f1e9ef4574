"""Multi-jurisdiction net income calculation with tax residency determination."""
