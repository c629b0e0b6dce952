# Command extensions loaded by the bot at startup
