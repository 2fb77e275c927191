"""
HTTP interface for the SMC structure engine
"""
