"""Mirror a Google Photos library to a local directory."""
