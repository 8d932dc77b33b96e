"""HTTP front end for docsnap."""
