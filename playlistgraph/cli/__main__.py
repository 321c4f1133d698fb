"""Allow ``python -m playlistgraph.cli`` execution."""

from playlistgraph.cli.build_graph import main

main()
