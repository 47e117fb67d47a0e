elements = {
    "field": {"css": "#clock input[type=text]"},
    "result": {"css": "#clock .time-holder .time"},
    "timezone": {"css": "#clock .time-holder .tz"},
}


async def lookup(widget, town):
    await widget.field.clear()
    await widget.field.send_keys(town + "\n")
    await widget.field.submit()


async def current_hour(widget):
    text = await widget.result.text()
    return int(text.split(":")[0])
