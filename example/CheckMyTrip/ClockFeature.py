description = "The clock widget shows the time zone of the town it was asked about"

scenario = [
    ClockWidget.lookup, [lookupTown],
    {"ClockWidget.timezone": expectedTZ},
]
