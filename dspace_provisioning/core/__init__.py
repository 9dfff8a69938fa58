"""Core Provisioning Logic Module

This module provides the DSpace provisioning logic, independent of any
hosting framework or identity-management runtime.

Module Structure:
    - dspace/        : DSpace REST API client, session handling and services
    - connector.py   : Scoped facade wiring configuration, transport and services
    - validators.py  : Input validation (base URL, timeouts, eperson fields)

Usage Pattern:
    Import explicitly when needed:
        from dspace_provisioning.core.connector import DSpaceConnector
        from dspace_provisioning.core.dspace import EqualsFilter, Resource
        from dspace_provisioning.core.validators import validate_email

Public APIs:
    Connector (dspace_provisioning.core.connector):
        - DSpaceConnector.authenticate()
        - DSpaceConnector.execute()
        - DSpaceConnector.translate_filter()
        - DSpaceConnector.test()
        - DSpaceConnector.close()

    DSpace Client (dspace_provisioning.core.dspace):
        - TokenManager (session with single-flight renewal)
        - DSpaceClient (HTTP client with one re-auth retry)
        - EPersonService, GroupService, ItemService
"""
