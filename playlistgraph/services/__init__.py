"""Graph construction services.

- identifier_extractor    -- playlist -> node identifiers
- cooccurrence_aggregator -- pairwise expansion + weighted edge map
- summary_service         -- weight statistics and top-K edges
- file_discovery          -- *.json listing and index-range selection
- graph_build_service     -- end-to-end orchestration over sinks
"""
