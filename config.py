"""
Configuration and default constants for the NestWise sheet nesting engine.
"""

# Sheet / material defaults (mm, kg/dm³, cost per kg)
DEFAULT_KERF = 2.0
DEFAULT_THICKNESS = 6.0
DEFAULT_DENSITY = 7.85
DEFAULT_COST_PER_KG = 5.50

NFP_CONFIG = {
    'grid_step': 5.0,         # Candidate anchor spacing for the placement search (mm)
    'circle_segments': 16,    # Tessellation used for circular pieces
    'inflate_polygons': True  # Offset moving polygons by kerf/2 before the Minkowski sum
}

BOTTOM_LEFT_CONFIG = {
    'grid_step': 10.0
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SEQUENCE_CONFIG = {
    'process': 'plasma',        # plasma, oxyfuel or both
    'entry_offset': 5.0,        # Plasma lead-in distance from the piece corner (mm)
    'cluster_radius': 100.0,    # Pieces closer than this share a heat cluster (mm)
    'pierce_dwell': 0.5         # G04 dwell after piercing (s)
}
