# -*- coding: utf-8 -*-
"""
Ingestion package for the Formation Content API.

Contains formation_client (requests-based JSON helper) and page_walker
(pagination loop over search results).
"""
