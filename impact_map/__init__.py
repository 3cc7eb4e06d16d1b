"""
Impact Map - incident map engine for a civic issue-reporting portal.
"""
