"""Resource materialization package.

Package Structure:
- file_materializer: Copies images into the uploads directory (data file sync)
- strapi_client: REST client for Strapi uploads and author creation
- upload_materializer: Uploads avatars to the Strapi media library
"""

from .file_materializer import DEFAULT_IMAGE, FileMaterializer
from .strapi_client import StrapiClient, StrapiRequestError
from .upload_materializer import UploadMaterializer

__all__ = [
    'DEFAULT_IMAGE',
    'FileMaterializer',
    'StrapiClient',
    'StrapiRequestError',
    'UploadMaterializer'
]
