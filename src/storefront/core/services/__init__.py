"""Application services.

Import services from their own modules; this package stays import-light so
repositories can depend on leaf services without cycles.
"""
