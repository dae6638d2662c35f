# helpers converting parse_qs value lists into a single typed value

def str_one(data:list):
	return data[0]

def int_one(data:list):
	return int(data[0])

def bool_one(data:list):
	return data[0].upper() in ['TRUE', 'T', 'Y', 'YES', '1', 'ON']
