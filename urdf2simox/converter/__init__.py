"""URDF to Simox XML conversion."""
