"""HTTP service for parsing and storing PlantUML class diagrams."""
