"""Catalog backend API client module.

Usage:
    from geoadmin.api import AdminClient

    async with AdminClient() as api:
        countries = await api.countries.list()
        states = await api.states.list_by_country(countries[0]["_id"])
        await api.cities.create({"name": "Lyon", "country": "c1", "state": "s1"})

        # Custom SEO fields
        fields = await api.seo_custom_fields.list()
"""

from .client import AdminClient
from .resources import (
    ResourceAPI,
    CountriesAPI,
    StatesAPI,
    CitiesAPI,
    LocationsAPI,
    ProductsAPI,
    SEOsAPI,
    InquiriesAPI,
    EmployeesAPI,
)
from .custom_fields import SEOCustomFieldsAPI
from .auth import AuthAPI

__all__ = [
    "AdminClient",
    "ResourceAPI",
    "CountriesAPI",
    "StatesAPI",
    "CitiesAPI",
    "LocationsAPI",
    "ProductsAPI",
    "SEOsAPI",
    "InquiriesAPI",
    "EmployeesAPI",
    "SEOCustomFieldsAPI",
    "AuthAPI",
]
