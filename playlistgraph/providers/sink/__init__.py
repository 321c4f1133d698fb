from playlistgraph.providers.sink.edge_list_sink import EdgeListSink
from playlistgraph.providers.sink.graphml_sink import GraphMLSink, escape_xml
from playlistgraph.providers.sink.neo4j_sink import NODE_LABELS, Neo4jSink

__all__ = ["EdgeListSink", "GraphMLSink", "NODE_LABELS", "Neo4jSink", "escape_xml"]
