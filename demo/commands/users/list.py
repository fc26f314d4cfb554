def command(state):
    for id, user in state.data.items():
        state.client.log(f"{id}: {user["name"]} ({user["role"]})")
