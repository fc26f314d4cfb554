from clide import command

USERS = {
    "1": {"name": "ada", "role": "admin"},
    "2": {"name": "linus", "role": "maintainer"},
}


@command(
    description="manage users",
    requires_subcommand=True,
    options={"role": {"type": "string", "choices": ["admin", "maintainer"], "description": "filter by role"}},
)
async def command(state):
    role = await state.options.role()
    users = {id: user for id, user in USERS.items() if role is None or user["role"] == role}
    await state.next(users)
