"""DSpace Provisioning Package.

To use the connector:
    from dspace_provisioning.config import load_settings
    from dspace_provisioning.core.connector import DSpaceConnector

To use the DSpace client library directly:
    from dspace_provisioning.core.dspace import DSpaceClient, TokenManager
"""
