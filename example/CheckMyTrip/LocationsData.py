lookupTown = "Paris"
expectedTZ = "+01:00"
