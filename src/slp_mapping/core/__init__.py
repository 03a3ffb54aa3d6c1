"""
Core data layer.

- data_loader: read the survey CSV and the two GeoJSON boundary files
- aggregator: group sample records into per-region value counts
- matcher: pair each record with its district / sub-district feature
- audit: cross-level consistency checks run once after loading
- map_context: active level and per-level data for the UI
- region_stats: per-region summaries and display tables
- hierarchy, paths, geography, diagnostics: supporting structures
"""
