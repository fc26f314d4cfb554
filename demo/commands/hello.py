from clide import command


@command(
    description="greet someone",
    options={"name": {"type": "string", "alias": ["n"], "default": "world", "description": "who to greet"}},
)
async def command(state):
    name = await state.options.name()
    await state.end(f"hello, {name}!")
