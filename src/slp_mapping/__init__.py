"""
SLP Mapping: district / sub-district explorer for a linguistic survey.
"""
