"""
Enrichment of search stubs into persistence-ready media records.
"""
