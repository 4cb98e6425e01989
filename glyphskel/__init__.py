"""GlyphSkeleton — Unicode TR39 confusable skeletons for spoof detection."""

__version__ = "0.1.0"
