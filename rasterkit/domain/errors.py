class RasterError(Exception):
    """
    Base for every failure raised by rasterkit.
    """


class InvalidParameterError(RasterError, ValueError):
    """
    Out-of-range quality, dimensions, factors or filter strengths.
    """


class InvalidRegionError(InvalidParameterError):
    """
    Crop region outside the source bounds.
    """


class UnsupportedFormatError(RasterError):
    """
    Byte stream is not a container format we can read or write.
    """


class CorruptDataError(RasterError):
    """
    Recognised container, undecodable content.
    """


class EncodingFailure(RasterError):
    """
    Encoder backend rejected the raster.
    """


class EmptyBatchError(InvalidParameterError):
    """
    Batch submitted with no items.
    """
