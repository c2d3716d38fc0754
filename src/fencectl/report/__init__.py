"""Result aggregation and report rendering."""
