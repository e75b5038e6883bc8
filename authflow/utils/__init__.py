from authflow.utils.masking import mask_subject

__all__ = ["mask_subject"]
