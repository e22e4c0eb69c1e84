"""Media sources: query parsing, YouTube streaming and Spotify link resolution."""