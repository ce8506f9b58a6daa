from .static_site import StaticSite
