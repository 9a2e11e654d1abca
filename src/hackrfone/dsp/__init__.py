"""Sample conversion."""

from hackrfone.dsp.samples import (
    IQSample,
    SampleAssembler,
    bytes_to_complex64,
    bytes_to_iq_i8,
    iq_to_cplx_f32,
    iq_to_cplx_i8,
)

__all__ = [
    "IQSample",
    "SampleAssembler",
    "bytes_to_complex64",
    "bytes_to_iq_i8",
    "iq_to_cplx_f32",
    "iq_to_cplx_i8",
]
