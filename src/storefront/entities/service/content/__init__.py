"""Entity package: storefront content (testimonials, banners, site settings)."""

from .entity import Banner, SiteSetting, Testimonial
from .repository import BannerRepository, SiteSettingRepository, TestimonialRepository
from .table import BannerTable, SiteSettingTable, TestimonialTable

__all__ = [
    "Banner",
    "BannerRepository",
    "BannerTable",
    "SiteSetting",
    "SiteSettingRepository",
    "SiteSettingTable",
    "Testimonial",
    "TestimonialRepository",
    "TestimonialTable",
]
