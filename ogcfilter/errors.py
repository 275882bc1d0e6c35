"""Error codes raised while translating a filter, with their messages."""

from __future__ import annotations

import enum


class FilterErrorCode(enum.Enum):
    """Reasons a filter cannot be translated into SQL."""

    NONE = 0
    FEATUREID = 1
    FILTER = 2
    BBOX = 3
    PROPERTYNAME = 4
    GEOM_PROPERTYNAME = 5
    UNITS = 6
    GEOMETRY = 7
    FID = 8
    SRS = 9
    FUNCTION = 10
    NAMESPACE = 11


_SERVICE_MESSAGES = {
    FilterErrorCode.FEATUREID: "Featureid must match layer.id",
    FilterErrorCode.FILTER: "Filter parameter doesn't validate WFS Schema",
    FilterErrorCode.BBOX: "Bbox must match xmin,ymin,xmax,ymax",
    FilterErrorCode.PROPERTYNAME: "PropertyName not available",
    FilterErrorCode.GEOM_PROPERTYNAME: "Geometry PropertyName not available",
    FilterErrorCode.UNITS: "Units not supported, use 'meters' or 'kilometers'",
    FilterErrorCode.GEOMETRY: "Bad geometry",
    FilterErrorCode.FID: "Only one allowed at once among FeatureId and GmlObjectId)",
    FilterErrorCode.SRS: "SrsName isn't valid",
    FilterErrorCode.FUNCTION: "Unknown Function Name used in Filter",
    FilterErrorCode.NAMESPACE: "Filter Element contains incoherent XML Namespaces",
}

_DESCRIPTIONS = {
    FilterErrorCode.FEATUREID: "Featureid must match layer.id",
    FilterErrorCode.FILTER: (
        "Filter parameter doesn't validate the filter.xsd schema. Check your xml"
    ),
    FilterErrorCode.BBOX: "Bbox must match xmin,ymin,xmax,ymax",
    FilterErrorCode.PROPERTYNAME: "PropertyName not available",
    FilterErrorCode.GEOM_PROPERTYNAME: "Geometry PropertyName not available",
    FilterErrorCode.UNITS: "Units not supported, use 'meters' or 'kilometers'",
    FilterErrorCode.GEOMETRY: "Bad geometry",
    FilterErrorCode.FID: "Only one type of identifier allowed (FeatureId or GmlObjectId)",
    FilterErrorCode.SRS: "SrsName isn't valid",
}


def error_message(code: FilterErrorCode) -> str | None:
    """Return the message reported to a service client, or None for no error."""
    return _SERVICE_MESSAGES.get(code)


def describe_error(code: FilterErrorCode) -> str:
    """Return a human readable description; empty when there is none."""
    return _DESCRIPTIONS.get(code, "")


class FilterError(Exception):
    """Raised when a filter cannot be translated."""

    locator = "FILTER"
    exception_code = "InvalidParameterValue"

    def __init__(self, code: FilterErrorCode) -> None:
        message = error_message(code)
        if message is None:
            raise ValueError(f"{code} does not describe an error")
        super().__init__(message)
        self.code = code
        self.message = message